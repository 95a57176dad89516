from teslacoil.cli import main

main()
