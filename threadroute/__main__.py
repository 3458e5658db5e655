from threadroute.cli.main import main

main()
