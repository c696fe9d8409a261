import tornado.web

from snowglobe.models import (
    Connected,
    ErrorMessage,
    MotionSample,
    Pong,
    RegisterMessage,
    SchemaDocument,
    ShakeConfirmed,
    ShakeEvent,
    Stats,
    UserConnected,
    UserCount,
    UserDisconnected,
)


class DocsHandler(tornado.web.RequestHandler):
    def get(self):
        shake_example = {
            "timestamp": 1718000000000,
            "intensity": 7,
            "acceleration": 18.4,
            "x": 3.1,
            "y": -12.7,
            "z": 9.8,
            "shakeNumber": 4,
        }
        motion_example = {
            "totalAcceleration": 16.2,
            "x": 2.0,
            "y": -11.5,
            "z": 10.9,
            "timestamp": 1718000000250,
        }

        schema = SchemaDocument(
            websocket_endpoints={"relay": "/ws"},
            frame_schema={
                "type": "object",
                "properties": {"event": {"type": "string"}, "data": {"type": "object"}},
                "required": ["event"],
            },
            inbound_messages={
                "register": RegisterMessage.model_json_schema(by_alias=True),
                "shake": {"type": "object", "required": ["timestamp", "intensity", "acceleration"]},
                "motion": {"type": "object", "properties": {"totalAcceleration": {"type": "number"}}},
                "ping": {"type": "object"},
            },
            outbound_messages={
                model.event: model.model_json_schema(by_alias=True)
                for model in (
                    Connected,
                    UserCount,
                    UserConnected,
                    UserDisconnected,
                    ShakeEvent,
                    ShakeConfirmed,
                    MotionSample,
                    Stats,
                    ErrorMessage,
                    Pong,
                )
            },
            examples={
                "register": {"event": "register", "data": {"type": "controller", "userAgent": "Mozilla/5.0"}},
                "shake": {"event": "shake", "data": shake_example},
                "motion": {"event": "motion", "data": motion_example},
            },
            notes=[
                "All WebSocket frames are JSON objects of the form {event, data}.",
                "Shakes closer than one second to the previous accepted shake are dropped without a reply.",
                "Motion samples are forwarded only when totalAcceleration exceeds 15.",
                "Shake, motion, presence and stats messages are broadcast to all registered displays.",
            ],
        )
        self.set_header("Content-Type", "application/json")
        self.write(schema.model_dump(mode="json"))
