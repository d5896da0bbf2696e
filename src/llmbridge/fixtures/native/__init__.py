"""Native IR test fixtures"""

NATIVE_REQUEST = {
    "messages": [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "Hi", "name": "bob"},
    ],
    "model": "gpt-4",
    "temperature": 0.3,
    "max_tokens": 20,
    "stop": ["END"],
}

NATIVE_RESPONSE = {
    "id": "resp-1",
    "model": "gpt-4",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Hello there"},
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 4, "completion_tokens": 2, "total_tokens": 6},
}

NATIVE_ERROR = {
    "error": {"type": "invalid_request_error", "message": "model is required", "param": "model"}
}

NATIVE_STREAM_EVENTS = [
    {"type": "message_start", "id": "resp-1", "model": "gpt-4"},
    {"type": "message_delta", "delta": {"content": "Hel"}},
    {"type": "message_delta", "delta": {"content": "lo"}},
    {
        "type": "message_end",
        "finish_reason": "stop",
        "usage": {"prompt_tokens": 4, "completion_tokens": 2, "total_tokens": 6},
    },
]
