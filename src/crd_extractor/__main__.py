import sys

from crd_extractor.cli import main

sys.exit(main())
