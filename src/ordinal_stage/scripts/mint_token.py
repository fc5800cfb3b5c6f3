"""Issue an access token for operators and scheduled jobs."""

from __future__ import annotations

import argparse

from ordinal_stage.core.security import (
    CAPABILITY_EDIT_RECORDS,
    CAPABILITY_MANAGE_OPTIONS,
    create_access_token,
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Mint a bearer token")
    parser.add_argument("subject", help="Caller identifier stored in the token subject")
    parser.add_argument(
        "--cap",
        action="append",
        choices=[CAPABILITY_EDIT_RECORDS, CAPABILITY_MANAGE_OPTIONS],
        default=None,
        help="Capability to grant (repeatable, defaults to edit_records)",
    )
    parser.add_argument("--minutes", type=int, default=None, help="Token lifetime in minutes")
    args = parser.parse_args()

    print(create_access_token(args.subject, args.cap or [CAPABILITY_EDIT_RECORDS], args.minutes))


if __name__ == "__main__":
    main()
