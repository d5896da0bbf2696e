"""Wire payload fixtures shared by tests and examples"""
