import sys

from .programmer import main

sys.exit(main())
