#!/usr/bin/env python
"""Django's command-line utility for administrative tasks."""

import os
import sys
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

BASE_DIR = Path(__file__).resolve().parent


def main():
    explicit_env = BASE_DIR / ".env"
    if explicit_env.exists():
        load_dotenv(dotenv_path=explicit_env)
    else:
        discovered = find_dotenv(filename=".env", usecwd=True)
        if discovered:
            load_dotenv(discovered)

    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
