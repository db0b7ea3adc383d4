from build_notifier.server.app import main

main()
