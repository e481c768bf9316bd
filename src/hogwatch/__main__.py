import sys

from hogwatch.cli import main

sys.exit(main())
