import sys

from proactive_cmd.app.main import main

sys.exit(main())
