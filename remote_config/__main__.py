import sys

from remote_config.main import main

sys.exit(main())
