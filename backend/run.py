from coinclaim import create_app, socketio

app = create_app()
 
if __name__ == '__main__':
    # Use SocketIO server to enable websockets in dev; the engine loops
    # are started by create_app when ENGINE_AUTOSTART is set
    socketio.run(app, debug=True, use_reloader=False)
