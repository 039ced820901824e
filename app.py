"""Application entry point for the jewellery repair shop API."""

from jewelryrepair.webapp import create_app

app = create_app()


if __name__ == "__main__":
    app.run(debug=True)
