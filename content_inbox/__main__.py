"""
Preview link enrichment from the command line without saving anything.

Usage: python -m content_inbox URL
"""

import argparse
import json
import logging
import time

from .config import Settings
from .router import enrich_url


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Preview how a link would be saved')
    parser.add_argument('url', help='Link to enrich')
    parser.add_argument('--json', action='store_true', help='Print the item record as JSON')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show pipeline logs')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    settings = Settings.from_env()
    if not settings.gemini_api_key:
        print('GEMINI_API_KEY not set; showing the result without AI enrichment.')

    started = time.monotonic()
    item = enrich_url(args.url, settings)
    elapsed_ms = int((time.monotonic() - started) * 1000)

    if args.json:
        print(json.dumps(item.to_record(), indent=2))
        return 0

    print(f'Title:      {item.title}')
    print(f'Page title: {item.page_title or "N/A"}')
    print(f'Summary:    {item.summary or "N/A"}')
    print(f'Category:   {item.category}')
    print(f'Tags:       {", ".join(item.tags)}')
    print(f'Source:     {item.source}')
    print(f'URL:        {item.url}')
    print(f'Took {elapsed_ms}ms')
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
