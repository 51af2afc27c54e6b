from proverbs.cli.main import main

main()
