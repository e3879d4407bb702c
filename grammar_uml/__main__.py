import sys

from grammar_uml.compiler import main

sys.exit(main())
