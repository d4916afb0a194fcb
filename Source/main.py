"""
ShareBill - Receipt bill splitter

python3 main.py                          # Interactive CLI mode
python3 main.py receipt.jpg              # Analyze image and start CLI
python3 main.py receipt.jpg --quick      # Quick mode - just show results
python3 main.py --help                   # Show help
"""

import os
import sys
import argparse

from config import (ANALYSIS_TIMEOUT, DEFAULT_MAX_WORKERS, PROTECT_OWNER,
                    WORKERS_MIN, WORKERS_MAX)
from cli_interface import ShareBillCLI
from ocr_processor import ParallelOCRProcessor
from receipt_analysis import OCRReceiptAnalyzer
from session import BillSession
from utils import format_currency, read_image_bytes


def quick_process(image_path: str, workers: int = DEFAULT_MAX_WORKERS,
                  timeout: float = ANALYSIS_TIMEOUT) -> bool:
    """Quick processing mode - just show results"""
    print(f"🚀 Quick processing: {image_path}")

    analyzer = OCRReceiptAnalyzer(processor=ParallelOCRProcessor(num_workers=workers))
    session = BillSession()

    if not session.run_analysis(analyzer, read_image_bytes(image_path), timeout=timeout or None):
        print(f"\n⚠ {session.last_error}")
        print("Try:")
        print("  • Better image quality/lighting")
        print("  • A flatter, uncropped photo of the receipt")
        return False

    totals = session.state.totals
    print(f"\n📋 Found {len(session.items)} items:")
    for i, item in enumerate(session.items, 1):
        print(f"  {i:2}. {item.name[:40]:40} {format_currency(item.price, totals.currency):>10}")
    print(f"\n   Subtotal: {format_currency(totals.subtotal, totals.currency)}")
    print(f"   Tax + Tip: {format_currency(totals.fee_pool, totals.currency)}")
    print(f"💰 Total: {format_currency(totals.total, totals.currency)}")

    m = analyzer.processor.metrics
    print(f"\n⚡ Processed in {m.processing_time:.2f}s using {m.workers_used} workers")
    return True


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='ShareBill - Split a receipt between friends',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sharebill                          # Interactive mode
  sharebill receipt.jpg              # Analyze image then interactive
  sharebill receipt.jpg --quick      # Quick mode - show results only
  sharebill --workers 8              # Use 8 parallel OCR workers
        """
    )

    parser.add_argument(
        'image',
        nargs='?',
        help='Receipt image to analyze'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help=f'Number of parallel OCR workers (default: {DEFAULT_MAX_WORKERS})'
    )
    parser.add_argument(
        '--quick',
        action='store_true',
        help='Quick mode - analyze image and show results only'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        default=ANALYSIS_TIMEOUT,
        help='Give up on receipt analysis after this many seconds (0 = wait forever)'
    )
    parser.add_argument(
        '--allow-owner-removal',
        action='store_true',
        help='Allow the bill owner to be removed from the friends list'
    )
    parser.add_argument(
        '--version',
        action='version',
        version='ShareBill 1.0'
    )

    args = parser.parse_args(argv)

    if not WORKERS_MIN <= args.workers <= WORKERS_MAX:
        print(f"⚠ Workers must be between {WORKERS_MIN} and {WORKERS_MAX}")
        args.workers = max(WORKERS_MIN, min(WORKERS_MAX, args.workers))

    if args.image and not os.path.exists(args.image):
        print(f"❌ File not found: {args.image}")
        sys.exit(1)

    if args.quick:
        if not args.image:
            parser.error("--quick needs an image")
        sys.exit(0 if quick_process(args.image, args.workers, args.timeout) else 1)

    cli = ShareBillCLI(
        session=BillSession(protect_owner=PROTECT_OWNER and not args.allow_owner_removal),
        analyzer=OCRReceiptAnalyzer(processor=ParallelOCRProcessor(num_workers=args.workers)),
        analysis_timeout=args.timeout,
    )

    if args.image:
        cli.process_receipt(args.image)

    cli.run()


def run():
    try:
        main()
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!")
        sys.exit(0)


if __name__ == "__main__":
    run()
