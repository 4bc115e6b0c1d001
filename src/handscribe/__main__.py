import sys

from handscribe.cli import main

sys.exit(main())
