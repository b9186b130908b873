#!/usr/bin/env python3
"""Relay a single submission from the command line."""

import sys
import argparse
import dataclasses

from formrelay import load_config, ping, relay


def parse_fields(pairs):
    submission = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"expected field=value, got {pair!r}")
        if key in submission:
            previous = submission[key]
            submission[key] = (previous if isinstance(previous, list) else [previous]) + [value]
        else:
            submission[key] = value
    return submission


def main(argv=None):
    parser = argparse.ArgumentParser(description="Relay one submission to a Google Form")
    parser.add_argument("fields", nargs="*", help="field=value pairs, e.g. entry.123=foo")
    parser.add_argument("--form-id", help="Override FORM_ID")
    parser.add_argument("--ping", action="store_true", help="Print the liveness status only")
    args = parser.parse_args(argv)

    if args.ping:
        print(ping())
        return 0

    try:
        submission = parse_fields(args.fields)
    except ValueError as e:
        parser.error(str(e))

    config = load_config()
    if args.form_id:
        config = dataclasses.replace(config, form_id=args.form_id)

    result = relay(submission, config)
    print(result)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
