from bnbpulse.server.main import main

main()
