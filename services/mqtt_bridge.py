import os, json, ssl

import paho.mqtt.client as mqtt
from loguru import logger

MQTT_URL    = os.getenv("MQTT_URL", "broker.hivemq.com")
MQTT_PORT   = int(os.getenv("MQTT_PORT", "1883"))
MQTT_TLS    = os.getenv("MQTT_TLS", "false").lower() == "true"
MQTT_PREFIX = os.getenv("MQTT_PREFIX", "ecosort")
DISABLED    = os.getenv("MQTT_DISABLED", "0").lower() in ("1","true","yes")

CHRONO_COLORS = {"green", "yellow", "red", "off"}

_client = None
_failed = False

def _connect() -> mqtt.Client:
    c = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
    port = MQTT_PORT
    if MQTT_TLS:
        c.tls_set(cert_reqs=ssl.CERT_REQUIRED)
        port = 8883
    c.connect(MQTT_URL, port, keepalive=60)
    c.loop_start()
    logger.info("[MQTT] connected to {}:{}", MQTT_URL, port)
    return c

def _client_or_none():
    """Lazily connected client; None once the broker was found unreachable."""
    global _client, _failed
    if DISABLED or _failed:
        return None
    if _client is None:
        try:
            _client = _connect()
        except (OSError, ValueError) as e:
            _failed = True
            logger.warning("[MQTT] disabled: {}", e)
    return _client

def publish(widget: str, channel: str, **payload):
    """Fire-and-forget message on ``<prefix>/<widget>/<channel>``."""
    c = _client_or_none()
    if not c:
        return
    topic = f"{MQTT_PREFIX}/{widget}/{channel}"
    info = c.publish(topic, json.dumps(payload), qos=1)
    if info.rc != mqtt.MQTT_ERR_SUCCESS:
        logger.warning("[MQTT] publish {} failed: rc={}", topic, info.rc)

def led(widget: str, on: bool):
    publish(widget, "led", on=bool(on))

def buzzer(widget: str, ms: int = 300):
    publish(widget, "buzzer", beep_ms=int(ms))

def chrono_color(widget: str, color: str):
    publish(widget, "chrono", color=color if color in CHRONO_COLORS else "off")

def verdict(widget: str, verdict: str, reason: str):
    publish(widget, "verdict", verdict=verdict, reason=reason)
