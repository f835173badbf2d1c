"""Fetch a URL, logging each retry through the on_retry hook"""

import sys

import requests

from relentless import AttemptsExhausted, Bounded, run_with_retry


def report(attempt, error, delay):
    print(f"Attempt {attempt} failed ({error}). Retrying in {delay:g} seconds...")


def fetch(attempt):
    resp = requests.get(sys.argv[1] if len(sys.argv) > 1 else "https://example.com", timeout=5)
    resp.raise_for_status()
    return resp


if __name__ == "__main__":
    try:
        resp = run_with_retry(fetch, Bounded(5), base_delay=0.5, on_retry=report)
    except AttemptsExhausted as e:
        sys.exit(f"Giving up: {e}")
    print(resp.text[:200])
