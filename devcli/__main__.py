from devcli.cli import main

raise SystemExit(main())
