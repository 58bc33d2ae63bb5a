import sys

from fallback_roots.main import main

sys.exit(main())
