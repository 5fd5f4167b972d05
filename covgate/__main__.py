from covgate.cli import main

raise SystemExit(main())
