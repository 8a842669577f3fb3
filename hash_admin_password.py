#!/usr/bin/env python3
"""
Print a password hash for GALLERY_ADMIN_PASSWORD_HASH.

Usage:
  hash_admin_password.py
"""
import sys
from getpass import getpass

from werkzeug.security import generate_password_hash


def make_hash(password: str) -> str:
    return generate_password_hash(password)


def main() -> int:
    pw1 = getpass("Admin password: ")
    pw2 = getpass("Confirm: ")
    if not pw1:
        print("Password must not be empty.")
        return 1
    if pw1 != pw2:
        print("Passwords do not match.")
        return 1

    hashed = make_hash(pw1)
    print(f"GALLERY_ADMIN_PASSWORD_HASH={hashed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
