from compcat.cli import main

main()
