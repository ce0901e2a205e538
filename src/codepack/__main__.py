from codepack.cli import main

raise SystemExit(main())
