#!/usr/bin/env python
"""Narzędzie wiersza poleceń Django dla projektu CaseLog."""
import os
import sys


def main():
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "caselog_config.settings")
    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
