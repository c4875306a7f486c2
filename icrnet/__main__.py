from icrnet.cli import main

main()
