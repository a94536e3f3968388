"""Minimal terminal demonstration of the chat session."""

from gemini_chat.api.service import clear_conversation, list_messages, run_chat

if __name__ == "__main__":
    for m in list_messages():
        print(f"{m['author']}: {m['text']}")
    while True:
        try:
            text = input("You: ")
        except (EOFError, KeyboardInterrupt):
            break
        if text.strip() == "/clear":
            clear_conversation()
            print("assistant:", list_messages()[0]["text"])
            continue
        reply = run_chat(text)
        if reply["assistant_message"] is None:
            continue
        print("assistant:", reply["assistant_message"]["text"])
        if reply["error"]:
            print(f"[error: {reply['error']}]")
