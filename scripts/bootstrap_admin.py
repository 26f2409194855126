#!/usr/bin/env python3
"""Emit SQL that creates (or promotes) a Jobly admin user."""

from __future__ import annotations

import argparse

from jobly.core.credentials import generate_password
from jobly.core.security import PasswordHasher


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(
    *,
    username: str,
    password_hash: str,
    first_name: str,
    last_name: str,
    email: str,
) -> str:
    username_value = _quote_sql(username)

    return f"""-- Jobly admin bootstrap SQL
-- Run this against the Jobly database (psql or equivalent privileged session).

insert into users (username, password, first_name, last_name, email, is_admin)
values ({username_value}, {_quote_sql(password_hash)}, {_quote_sql(first_name)}, {_quote_sql(last_name)}, {_quote_sql(email)}, true)
on conflict (username) do update
set is_admin = true,
    password = excluded.password;
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to bootstrap a Jobly admin user.")
    parser.add_argument("--username", required=True, help="Admin username")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--first-name", default="Admin", help="First name for a newly created user")
    parser.add_argument("--last-name", default="User", help="Last name for a newly created user")
    parser.add_argument(
        "--password",
        help="Plaintext password to hash; a random one is generated and reported when omitted",
    )
    args = parser.parse_args()

    password = args.password or generate_password()
    print(
        render_sql(
            username=args.username,
            password_hash=PasswordHasher().hash(password),
            first_name=args.first_name,
            last_name=args.last_name,
            email=args.email,
        )
    )
    if not args.password:
        print(f"-- generated password: {password}")


if __name__ == "__main__":
    main()
