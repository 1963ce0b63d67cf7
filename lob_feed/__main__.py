from lob_feed.runner import main

raise SystemExit(main())
