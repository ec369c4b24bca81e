from fedbroker.cli.main import main

main()
