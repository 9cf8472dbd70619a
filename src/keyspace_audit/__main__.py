import sys

from keyspace_audit.cli import main

sys.exit(main())
