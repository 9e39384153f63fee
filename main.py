import dotenv

from fellow_mcp_server.server import main

# Export .env values into the process so CLI-less launches (e.g. from an
# MCP client config) pick up FELLOW_API_KEY and FELLOW_SUBDOMAIN.
dotenv.load_dotenv()


if __name__ == "__main__":
    main()
