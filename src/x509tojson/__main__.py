from x509tojson.main import main

main()
