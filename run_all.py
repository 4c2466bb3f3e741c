#!/usr/bin/env python3
"""
run_all.py
- parse:    extract orders from every document given (files or directories)
            and write outputs/<stem>_order.json
- generate: render labels for a (reviewed) order JSON with a pluggable renderer
            and store them under outputs/<bucket>/<folder>/
"""

import argparse
import importlib
import json
import mimetypes
import sys
from pathlib import Path

from vision_orders.config import get_config, setup_logging
from vision_orders.generate import generate_labels, upload_batch
from vision_orders.models import InvalidInputError
from vision_orders.parser import EXTENSION_FAMILIES, parse_order_document
from vision_orders.storage import LocalDirectoryStorage
from vision_orders.transform import batch_to_dict, order_from_dict, order_to_dict
from vision_orders.validate import validate_obj


def iter_documents(paths):
    for p in paths:
        p = Path(p)
        if p.is_dir():
            for f in sorted(p.iterdir()):
                if f.is_file() and not f.name.startswith('.') and f.suffix.lower() in EXTENSION_FAMILIES:
                    yield f
        elif p.is_file():
            yield p
        else:
            print("Skipping missing path", p)


def load_renderer(target):
    """'package.module:attribute' -> renderer instance (classes and factories are called)."""
    module_name, _, attr = target.partition(':')
    if not module_name or not attr:
        raise SystemExit(f"--renderer must look like module:attribute, got {target!r}")
    obj = getattr(importlib.import_module(module_name), attr)
    if isinstance(obj, type) or (not hasattr(obj, 'render') and callable(obj)):
        obj = obj()
    if not hasattr(obj, 'render'):
        raise SystemExit(f"{target} does not provide a render(request) method")
    return obj


def cmd_parse(args, config):
    out_dir = Path(config.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    processed = []
    for f in iter_documents(args.paths):
        mime_type, _ = mimetypes.guess_type(f.name)
        try:
            result = parse_order_document(f.read_bytes(), mime_type, f.name, config=config)
        except InvalidInputError as e:
            print("Rejected", f, "-", e)
            continue
        res = order_to_dict(result.order)
        ok, errors = validate_obj(res)
        res['validation_ok'] = ok
        res['validation_errors'] = errors
        out_path = out_dir / f"{f.stem}_order.json"
        out_path.write_text(json.dumps(res, indent=2, ensure_ascii=False), encoding="utf-8")
        processed.append(out_path)
        status = "DEGRADED" if result.order.notes else "ok"
        print(f"Wrote {out_path} ({len(result.order.items)} items, {status})")
    print("\nProcessed files:", [str(p) for p in processed])
    return 0


def cmd_generate(args, config):
    order_path = Path(args.order)
    order = order_from_dict(json.loads(order_path.read_text(encoding="utf-8")))
    renderer = load_renderer(args.renderer)
    try:
        batch = generate_labels(order.items, renderer, packing_date=order.packing_date)
    except InvalidInputError as e:
        print("Nothing to generate:", e)
        return 2

    storage = LocalDirectoryStorage(config.output_dir)
    stored = upload_batch(batch, storage, bucket=args.bucket or config.labels_bucket,
                          folder=args.folder or config.labels_folder)

    summary = batch_to_dict(batch)
    summary['files'] = [{'id': s.id, 'name': s.name, 'path': s.path, 'bucket': s.bucket} for s in stored]
    out_path = Path(config.output_dir) / f"{order_path.stem}_labels.json"
    out_path.write_text(json.dumps(summary, indent=2, ensure_ascii=False), encoding="utf-8")

    for row in summary['data']:
        detail = ', '.join(l['fileName'] for l in row.get('labels', [])) or row.get('error')
        print(f"  [{row['status']}] {row['productName']} ({row['labelType']}): {detail}")
    print(f"Wrote {out_path}: {summary['succeeded']} ok, {summary['failed']} failed")
    return 1 if batch.failed else 0


def build_arg_parser():
    parser = argparse.ArgumentParser(description="Vision order ingestion and label generation")
    parser.add_argument("--env", choices=["development", "production", "testing"], default=None,
                        help="Configuration profile (defaults to $ENVIRONMENT)")
    parser.add_argument("--output-dir", default=None, help="Override the output directory")
    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", help="Extract orders from documents")
    p_parse.add_argument("paths", nargs="+", help="Files or directories with order documents")

    p_gen = sub.add_parser("generate", help="Generate labels for a parsed order JSON")
    p_gen.add_argument("order", help="Order JSON written by 'parse' (optionally edited)")
    p_gen.add_argument("--renderer", required=True, help="Renderer as module:attribute")
    p_gen.add_argument("--bucket", default=None)
    p_gen.add_argument("--folder", default=None)
    return parser


def main(argv=None):
    args = build_arg_parser().parse_args(argv)
    config = get_config(args.env)
    if args.output_dir:
        config.output_dir = args.output_dir
    setup_logging(config)
    config.validate()
    print(f"[run_all] {args.command} (vision backend: {config.vision_backend})")
    if args.command == "parse":
        return cmd_parse(args, config)
    return cmd_generate(args, config)


if __name__ == "__main__":
    sys.exit(main())
