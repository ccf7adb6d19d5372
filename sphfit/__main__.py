from sphfit.cli import main

raise SystemExit(main())
