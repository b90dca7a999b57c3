"""
zurefs - Python Example

Walks through the filesystem operations against a storage account.

Requirements:
    pip install -e .

Usage:
    ZUREFS_ACCOUNT_NAME=myaccount ZUREFS_ACCOUNT_KEY=<base64 key> python filesystem_example.py
    python filesystem_example.py zurefs.yaml
"""

import asyncio
import io
import sys

from zurefs import BlobStorageService, NotFoundError
from zurefs.core import ConfigManager, setup_logging_from_config


async def directory_example(fs: BlobStorageService):
    """
    Demonstrates directories:
    - Containers as top-level directories
    - Prefixes as subdirectories
    """
    print("\n=== Directory Example ===\n")

    await fs.create_directory("zurefs-demo")
    print(f"Containers: {await fs.get_containers()}")

    await fs.save_file("zurefs-demo/reports/2025/q1.csv", b"region,total\nwest,10\n")
    await fs.save_file("zurefs-demo/reports/2025/q2.csv", b"region,total\nwest,12\n")
    await fs.save_file("zurefs-demo/reports/summary.txt", b"two quarters")

    for directory in await fs.get_directories("zurefs-demo/reports"):
        print(f"  [dir]  {directory.path}")
    for entry in await fs.get_files("zurefs-demo/reports/2025"):
        print(f"  [file] {entry.path} ({entry.size} bytes, modified {entry.last_modified:%Y-%m-%d %H:%M})")


async def file_example(fs: BlobStorageService):
    """
    Demonstrates files:
    - Save from a stream
    - Append
    - Read back
    """
    print("\n=== File Example ===\n")

    await fs.save_file("zurefs-demo/logs/app.log", io.BytesIO(b"started\n"))
    await fs.append_file("zurefs-demo/logs/app.log", b"processing\n")
    await fs.append_file("zurefs-demo/logs/app.log", b"xxfinished\nxx", offset=2, count=9)

    async with await fs.read_file("zurefs-demo/logs/app.log") as stream:
        print((await stream.read()).decode())

    await fs.delete_file("zurefs-demo/logs/app.log")
    try:
        await fs.get_file("zurefs-demo/logs/app.log")
    except NotFoundError:
        print("app.log deleted")


async def main():
    config = ConfigManager().load(config_file=sys.argv[1] if len(sys.argv) > 1 else None)
    setup_logging_from_config(config.logging)

    async with BlobStorageService(config.storage) as fs:
        try:
            await directory_example(fs)
            await file_example(fs)
        finally:
            await fs.delete_directory("zurefs-demo")
            print("\nCleaned up 'zurefs-demo'")


if __name__ == "__main__":
    asyncio.run(main())
