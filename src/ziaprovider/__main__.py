from ziaprovider.cli.app import main

main()
