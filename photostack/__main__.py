import sys

from photostack.cli import main

sys.exit(main())
