"""Command line front end: run the whole workflow without a UI."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from .config import LANGUAGES, Config
from .deck import DeckServiceClient
from .models import DeckType, VocabularyEntry
from .utils.logger import setup_logger
from .workflow import Step, Workflow, WorkflowState


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snapdeck",
        description="Create an Anki deck from text or a photo of text.",
    )
    parser.add_argument("-l", "--language", default="en",
                        help="Target language code for translations (default: en)")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--text", help="Text to turn into cards")
    source.add_argument("--text-file", type=Path, help="Read the text from a file")
    source.add_argument("--image", type=Path, help="Photo or scan to read the text from")
    parser.add_argument("-t", "--type", choices=[t.value for t in DeckType],
                        default=DeckType.VOCABULARY.value, help="Kind of cards")
    parser.add_argument("-x", "--exclude", type=int, nargs="*", default=[],
                        help="Card numbers (as listed) to leave out")
    parser.add_argument("-o", "--output-dir", default=Config.OUTPUT_DIR,
                        help="Where to save the .apkg file")
    parser.add_argument("--list-languages", action="store_true",
                        help="Show the available target languages and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _print_progress(state: WorkflowState) -> None:
    if state.is_processing:
        print(f"... {state.progress}")


def _print_notice(state: WorkflowState) -> None:
    if state.notice:
        print(f"[!] {state.notice.message}")


def _print_cards(flow: Workflow) -> None:
    print(f"\nDeck: {flow.state.deck_name or Config.DEFAULT_DECK_NAME}")
    for number, entry in enumerate(flow.editor, start=1):
        mark = "x" if entry.selected else " "
        front, back = entry.card_pair()
        extra = ""
        if isinstance(entry, VocabularyEntry) and entry.base_form:
            extra = f"  [{entry.base_form}]"
        print(f"  [{mark}] {number:3d}. {front} -> {back}{extra}")


async def run(args: argparse.Namespace) -> bool:
    """Drive the workflow from parsed arguments. Returns True on success."""
    client = DeckServiceClient(output_dir=args.output_dir)
    async with Workflow(deck_client=client) as flow:
        flow.subscribe(_print_progress)

        flow.select_language(args.language)
        if flow.state.step is not Step.INPUT:
            _print_notice(flow.state)
            return False

        if args.image:
            await flow.process_image(args.image)
        else:
            text = args.text
            if args.text_file:
                text = args.text_file.read_text(encoding="utf-8")
            if text is None:
                text = sys.stdin.read()
            flow.choose_text_entry()
            flow.submit_text(text)

        if flow.state.step is not Step.DECK_TYPE:
            _print_notice(flow.state)
            return False

        await flow.choose_deck_type(args.type)
        if flow.state.step is not Step.SELECTION:
            _print_notice(flow.state)
            return False

        for number in args.exclude:
            if 1 <= number <= len(flow.editor) and flow.editor[number - 1].selected:
                flow.editor.toggle(number - 1)
        _print_cards(flow)

        await flow.submit_selection()
        if flow.state.step is not Step.RESULT:
            _print_notice(flow.state)
            return False

        print(f"\nYour Anki deck has been saved: {flow.state.package_path}")
        return True


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logger(level="DEBUG" if args.verbose else None)

    if args.list_languages:
        for lang in LANGUAGES:
            print(f"{lang.flag}  {lang.code}  {lang.name}")
        return 0

    try:
        success = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n[!] Aborted by user.")
        return 1
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
