"""Mint a development bearer token for calling the owner-scoped API locally."""

import argparse

from services.auth_service import auth_service


def main():
    parser = argparse.ArgumentParser(description="Generate a bearer token for a user id")
    parser.add_argument("uid", help="Stable user id to embed as the token subject")
    parser.add_argument("--email", help="Optional email claim")
    args = parser.parse_args()

    token = auth_service.create_access_token(args.uid, email=args.email)

    print("✅ Token generated")
    print("\nUse it as:")
    print(f"Authorization: Bearer {token}")


if __name__ == "__main__":
    main()
