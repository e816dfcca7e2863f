"""Standalone script to hit the openFDA drug label API and inspect raw responses."""

import asyncio
import json
import logging
import os
import sys

import aiohttp
from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BASE_URL = "https://api.fda.gov/drug/label.json"
DRUG_NAME = sys.argv[1] if len(sys.argv) > 1 else "ibuprofen"


def _params(search: str, limit: int) -> dict:
    params = {"search": search, "limit": limit}
    api_key = os.getenv("OPENFDA_API_KEY")
    if api_key:
        params["api_key"] = api_key
    return params


async def brand_or_generic(session: aiohttp.ClientSession, name: str, limit: int = 3) -> dict:
    """Primary lookup: brand OR generic name."""
    search = f'(openfda.brand_name:"{name}" OR openfda.generic_name:"{name}")'
    async with session.get(BASE_URL, params=_params(search, limit)) as resp:
        logger.info("brand_or_generic status: %s", resp.status)
        return await resp.json()


async def openfda_fields(session: aiohttp.ClientSession, name: str, limit: int = 10) -> list:
    """Only the harmonised openfda block of each record."""
    search = f'openfda.generic_name:"{name}" OR openfda.brand_name:"{name}"'
    async with session.get(BASE_URL, params=_params(search, limit)) as resp:
        logger.info("openfda_fields status: %s", resp.status)
        body = await resp.json()
    return [r.get("openfda", {}) for r in body.get("results", [])]


async def main() -> None:
    async with aiohttp.ClientSession() as session:
        logger.info("--- brand_or_generic for '%s' ---", DRUG_NAME)
        print(json.dumps(await brand_or_generic(session, DRUG_NAME), indent=2))

        logger.info("--- openfda_fields for '%s' ---", DRUG_NAME)
        print(json.dumps(await openfda_fields(session, DRUG_NAME), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
