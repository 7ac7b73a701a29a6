from whisky_store.main import main

main()
