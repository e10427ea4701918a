"""
SnapDeck: Flashcards from Text and Photos
-----------------------------------------

Entry point for building an Anki deck from the command line.
"""

import sys

from snapdeck.cli import main


if __name__ == "__main__":
    sys.exit(main())
