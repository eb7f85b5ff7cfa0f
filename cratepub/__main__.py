from cratepub.cli.app import main

main()
