from cargo_dynamic.cli import main

raise SystemExit(main())
