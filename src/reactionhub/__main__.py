import sys

from reactionhub.cli import main

sys.exit(main())
