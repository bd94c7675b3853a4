from mesc.cli import main

main()
