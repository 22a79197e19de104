from deferred_tools.ui.cli.app import main

raise SystemExit(main())
