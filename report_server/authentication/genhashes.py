"""
Generate a LOGIN_HASHES value for the moderator dashboard.

    report-server-genhashes [--rounds N]

Prompts for passwords one at a time (input is not echoed); an empty password finishes.
"""

import argparse
import getpass
import sys
from typing import Callable, List, Optional

from report_server.authentication.security import hash_password
from report_server.config import get_settings


def collect_hashes(prompt: Callable[[str], str], rounds: int) -> List[str]:
    hashes = []
    while True:
        password = prompt("Enter password: ")
        if password == "":
            break
        print("Hashing password...")
        hashes.append(hash_password(password, rounds=rounds))
        print("Password hashed successfully\n")
    return hashes


def format_login_hashes(hashes: List[str]) -> str:
    return "; ".join(hashes)


def main(argv: Optional[List[str]] = None, prompt: Callable[[str], str] = getpass.getpass) -> int:
    parser = argparse.ArgumentParser(description="Hash moderator passwords for LOGIN_HASHES.")
    parser.add_argument("--rounds", type=int, default=None, help="bcrypt cost factor (default: SALT_ROUNDS)")
    args = parser.parse_args(argv)
    rounds = args.rounds if args.rounds is not None else get_settings().salt_rounds

    print("Enter passwords one at a time. Press Enter with an empty password to finish.\n")
    try:
        hashes = collect_hashes(prompt, rounds)
    except (EOFError, KeyboardInterrupt):
        print()
        return 1

    if not hashes:
        print("No passwords were provided.")
        return 0

    value = format_login_hashes(hashes)
    rule = "=" * 50
    print(f"\n{rule}\nSet your LOGIN_HASHES environment variable to:\n{rule}")
    print(value)
    print(f"\n{rule}\nExample usage:")
    print(f'export LOGIN_HASHES="{value}"')
    print(rule)
    return 0


if __name__ == "__main__":
    sys.exit(main())
