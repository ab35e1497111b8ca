from rtbump.cli import main

main()
