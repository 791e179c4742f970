"""
Issue an identity token for local testing.

Usage: python scripts/issue_token.py <uid> [display name] [email]
"""

import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from snippet_hub.auth.jwt_utils import create_identity_token
from snippet_hub.config import settings


def main():
    if len(sys.argv) < 2:
        print(__doc__.strip())
        sys.exit(1)

    uid = sys.argv[1]
    display_name = sys.argv[2] if len(sys.argv) > 2 else None
    email = sys.argv[3] if len(sys.argv) > 3 else None

    secret = settings.auth_jwt_secret.get_secret_value()
    print(f"Secret length: {len(secret)}")

    token = create_identity_token(uid, display_name=display_name, email=email)
    print(f"Token: {token}")


if __name__ == "__main__":
    main()
