"""OpenAI test fixtures"""

# Simple chat request
OPENAI_CHAT_REQUEST = {
    "model": "gpt-4",
    "messages": [
        {
            "role": "system",
            "content": "You are a helpful assistant.",
        },
        {
            "role": "user",
            "content": "Hello, how are you?",
        },
    ],
    "temperature": 0.7,
    "max_tokens": 100,
}

# Request using every field the IR carries
OPENAI_FULL_REQUEST = {
    "model": "gpt-4o",
    "messages": [
        {"role": "system", "content": "Answer tersely."},
        {"role": "user", "content": "Name a prime.", "name": "alice"},
        {"role": "assistant", "content": "7"},
        {"role": "user", "content": "Another one."},
    ],
    "temperature": 0.2,
    "max_tokens": 50,
    "top_p": 0.9,
    "frequency_penalty": 0.5,
    "presence_penalty": 0.1,
    "stop": ["\n\n", "END"],
    "stream": True,
}

# Scenario: system prompt inline, to be segmented for anthropic
OPENAI_SYSTEM_REQUEST = {
    "model": "gpt-4",
    "messages": [
        {"role": "system", "content": "You are helpful."},
        {"role": "user", "content": "Hi"},
    ],
}

# Content given as a list of parts
OPENAI_CONTENT_PARTS_REQUEST = {
    "model": "gpt-4o",
    "messages": [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "Describe "},
                {"type": "image_url", "image_url": {"url": "https://example.com/cat.png"}},
                {"type": "text", "text": "this image."},
            ],
        }
    ],
    "max_completion_tokens": 64,
    "stop": "STOP",
}

# Simple chat response
OPENAI_CHAT_RESPONSE = {
    "id": "chatcmpl-123",
    "object": "chat.completion",
    "model": "gpt-4",
    "choices": [
        {
            "index": 0,
            "message": {
                "role": "assistant",
                "content": "Hello! I'm doing well, thank you. How can I help you today?",
            },
            "finish_reason": "stop",
        }
    ],
    "usage": {
        "prompt_tokens": 20,
        "completion_tokens": 12,
        "total_tokens": 32,
    },
}

OPENAI_ERROR = {
    "error": {
        "message": "Rate limit reached for gpt-4",
        "type": "rate_limit_error",
        "param": None,
        "code": "rate_limit_exceeded",
    }
}

# Streaming chunks, in order
OPENAI_STREAM_START = {
    "id": "chatcmpl-stream-1",
    "object": "chat.completion.chunk",
    "model": "gpt-4",
    "choices": [{"index": 0, "delta": {"role": "assistant", "content": ""}, "finish_reason": None}],
}

OPENAI_STREAM_DELTA = {
    "id": "chatcmpl-stream-1",
    "object": "chat.completion.chunk",
    "model": "gpt-4",
    "choices": [{"index": 0, "delta": {"content": "Hi"}, "finish_reason": None}],
}

OPENAI_STREAM_END = {
    "id": "chatcmpl-stream-1",
    "object": "chat.completion.chunk",
    "model": "gpt-4",
    "choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}],
    "usage": {"prompt_tokens": 5, "completion_tokens": 1, "total_tokens": 6},
}

OPENAI_STREAM_ERROR = {
    "error": {
        "message": "The server had an error while processing your request.",
        "type": "server_error",
        "param": None,
        "code": None,
    }
}

# Raw SSE text for the three chunks above plus the completion sentinel
OPENAI_STREAM_SSE = (
    'data: {"id":"chatcmpl-stream-1","object":"chat.completion.chunk","model":"gpt-4",'
    '"choices":[{"index":0,"delta":{"role":"assistant","content":""},"finish_reason":null}]}\n\n'
    'data: {"id":"chatcmpl-stream-1","object":"chat.completion.chunk","model":"gpt-4",'
    '"choices":[{"index":0,"delta":{"content":"Hi"},"finish_reason":null}]}\n\n'
    'data: {"id":"chatcmpl-stream-1","object":"chat.completion.chunk","model":"gpt-4",'
    '"choices":[{"index":0,"delta":{},"finish_reason":"stop"}],'
    '"usage":{"prompt_tokens":5,"completion_tokens":1,"total_tokens":6}}\n\n'
    "data: [DONE]\n\n"
)
