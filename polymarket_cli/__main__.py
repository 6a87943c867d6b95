import sys

from polymarket_cli.cli import main

sys.exit(main())
