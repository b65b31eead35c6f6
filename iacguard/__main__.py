import os

from dotenv import load_dotenv

from iacguard.cli.commands import app

# Load .env file from ~/.iacguard/ if it exists
# Precedence: existing env vars > .env file (override=False)
load_dotenv(os.path.expanduser("~/.iacguard/.env"), override=False)

if __name__ == "__main__":
    app()
