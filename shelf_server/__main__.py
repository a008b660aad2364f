from shelf_server.cli import main

raise SystemExit(main())
