"""Run the chat API with uvicorn."""

import os


def main() -> None:
    import uvicorn

    host = os.getenv("FITTRCK_HOST", "127.0.0.1")
    port = int(os.getenv("FITTRCK_PORT", "8000"))
    uvicorn.run("fittrck_chat.api.app:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
