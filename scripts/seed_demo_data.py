#!/usr/bin/env python3
"""
Seed demo users, billing fields, bills, a complaint and a notice.
Run from project root: STORAGE_BACKEND=database python scripts/seed_demo_data.py
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from societyhub.config import Settings
from societyhub.logging import setup_logging
from societyhub.services.seed import seed_demo_data
from societyhub.storage.factory import create_storage


def run():
    settings = Settings(seed_demo_data=False)
    setup_logging(settings.log_level, settings.log_json)
    storage = create_storage(settings)
    if seed_demo_data(storage):
        print(f"Seeded demo data into {storage.name} storage")
    else:
        print("Users already present, nothing to do")


if __name__ == "__main__":
    run()
