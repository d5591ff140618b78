import sys

from contoso_crafts.cli import main

sys.exit(main())
