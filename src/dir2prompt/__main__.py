from dir2prompt.cli import main

raise SystemExit(main())
