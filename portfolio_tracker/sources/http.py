"""Shared aiohttp plumbing for the vendor adapters."""
import ssl

import aiohttp
import certifi


def build_connector() -> aiohttp.TCPConnector:
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    return aiohttp.TCPConnector(ssl=ssl_context)


def build_timeout(total_seconds: int) -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(total=total_seconds)


def is_success(status: int) -> bool:
    return 200 <= status < 300
