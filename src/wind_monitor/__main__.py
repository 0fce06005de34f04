from wind_monitor.main import main

if __name__ == "__main__":
    main()
