from crc_cli.cli import main

main()
