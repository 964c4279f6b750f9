from diffdb.cli import main

main()
