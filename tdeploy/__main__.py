from tdeploy.cli.app import main

main()
