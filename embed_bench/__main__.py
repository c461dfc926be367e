from embed_bench.bench.cli import main

raise SystemExit(main())
