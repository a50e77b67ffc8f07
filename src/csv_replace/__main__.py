from csv_replace.cli import main

if __name__ == "__main__":
    main()
