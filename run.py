from app import create_app

app = create_app()

if __name__ == "__main__":
    # the reloader would start a second sweep thread
    app.run(debug=True, use_reloader=False)
