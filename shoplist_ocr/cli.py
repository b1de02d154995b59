"""
Command line entry point.

Usage:
    shoplist image list.jpg
    shoplist image page1.jpg page2.jpg --engine easyocr --json
    shoplist image list.jpg --magic
    shoplist image list.jpg --out_dir out
    shoplist text groceries.txt
    echo "2 apples, milk" | shoplist text -
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from .categorizer import CategorizationIndex
from .core.recognition import OCREngine
from .core.utils import ShoppingItem, sections_to_dict, save_process_result
from .ordering import collate_items, build_sections
from .pipeline import ShoppingListPipeline, process_text_to_items
from .vision_parser import VisionParseError, create_parser, should_suggest_magic_mode, finalize_list_title


def format_item(item: ShoppingItem) -> str:
    text = item.canonical_name
    if item.quantity:
        text = f"{item.quantity} {text}"
    if item.notes:
        text += f" ({item.notes})"
    return text


def print_checklist(items: List[ShoppingItem], title: Optional[str] = None):
    print("\n" + "=" * 60)
    print(title or "SHOPPING LIST")
    print("=" * 60)

    if not items:
        print("(no items found)")

    for section in build_sections(items):
        print(f"\n{section.title} ({section.remaining_count})")
        print("-" * 60)
        for item in section.items:
            box = "[x]" if item.checked else "[ ]"
            print(f"  {box} {format_item(item)}")

    print("=" * 60)


def print_json(items: List[ShoppingItem], title: Optional[str] = None, extra: Optional[dict] = None):
    data = {"title": title, "sections": sections_to_dict(build_sections(items))}
    data.update(extra or {})
    print(json.dumps(data, indent=2))


def run_image(args) -> int:
    index = CategorizationIndex()
    vision_parser = create_parser(args.vision, model=args.model, endpoint=args.proxy_url) if args.magic else None
    pipeline = ShoppingListPipeline(
        index=index,
        engine=OCREngine(args.engine, args.lang),
        vision_parser=vision_parser
    )

    items: List[ShoppingItem] = []
    title = None
    warnings = []
    confidences = []

    for path in tqdm(args.images, desc="Processing", unit="image", disable=len(args.images) < 2):
        if args.magic:
            try:
                magic = pipeline.process_image_with_vision(path)
            except VisionParseError as e:
                print(f"[Vision] {path}: {e}", file=sys.stderr)
                return 1
            batch = magic.items
            title = title or magic.list_title
            warnings.extend(magic.warnings)
            saved = magic
        else:
            result = pipeline.process_image_to_items(path)
            batch = result.items
            confidences.append(result.ocr_confidence)
            saved = result
            blank = pipeline.preprocessor.is_likely_blank(pipeline.preprocessor.load(path))
            if should_suggest_magic_mode(False, result.ocr_confidence, len(result.items), not blank):
                print(f"[Pipeline] {path}: low OCR confidence, try --magic for a better read")

        if args.out_dir:
            save_process_result(saved, str(Path(args.out_dir) / f"{Path(path).stem}.json"), build_sections(batch))

        items = collate_items(items, batch)

    if title is None and items:
        title = finalize_list_title(None, [item.canonical_name for item in items])

    if args.json:
        print_json(items, title, {"warnings": warnings, "ocr_confidence": confidences})
    else:
        print_checklist(items, title)
        for warning in warnings:
            print(f"warning: {warning}")

    return 0


def run_text(args) -> int:
    if args.file == "-":
        text = sys.stdin.read()
    else:
        with open(args.file, 'r') as f:
            text = f.read()

    items = process_text_to_items(text, CategorizationIndex())
    title = finalize_list_title(None, [item.canonical_name for item in items]) if items else None

    if args.json:
        print_json(items, title)
    else:
        print_checklist(items, title)
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shoplist",
        description="Turn photos or text of shopping lists into ordered checklists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # OCR a photo
  shoplist image list.jpg

  # Several photos merged into one list, as JSON
  shoplist image page1.jpg page2.jpg --json

  # Vision model instead of local OCR (needs ANTHROPIC_API_KEY)
  shoplist image list.jpg --magic
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    image = subparsers.add_parser("image", help="Extract items from one or more photos")
    image.add_argument("images", nargs="+", help="Image files (later photos are merged into the list)")
    image.add_argument(
        "--engine", "-e", choices=["tesseract", "easyocr"], default="tesseract",
        help="OCR engine (default: tesseract)"
    )
    image.add_argument("--lang", "-l", default="eng", help="OCR language code (default: eng)")
    image.add_argument("--magic", action="store_true", help="Parse with the vision model instead of OCR")
    image.add_argument(
        "--vision", choices=["anthropic", "proxy"], default="anthropic",
        help="Vision backend for --magic (default: anthropic)"
    )
    image.add_argument("--model", default=None, help="Vision model id")
    image.add_argument("--proxy_url", default=None, help="Vision proxy endpoint (with --vision proxy)")
    image.add_argument("--json", action="store_true", help="Print JSON instead of a checklist")
    image.add_argument("--out_dir", "-o", default=None, help="Also save each photo's result as <name>.json here")
    image.set_defaults(func=run_image)

    text = subparsers.add_parser("text", help="Build a list from typed text")
    text.add_argument("file", help="Text file, or - for stdin")
    text.add_argument("--json", action="store_true", help="Print JSON instead of a checklist")
    text.set_defaults(func=run_text)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
