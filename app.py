# app.py

import logging
from datetime import datetime
from functools import wraps
from flask import Flask, jsonify, request, Response
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
import os

from schedule_parser import (DEFAULT_COLUMNS, ScheduleDataError, ScheduleStatus,
                             format_schedule_table, load_schedule_data, resolve_status)

# --- App Initialization, Config, and Extensions ---
app = Flask(__name__)
CORS(app)
logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s:%(message)s')
app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///scheduler.db')
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['SCHEDULE_CSV_PATH'] = os.environ.get('SCHEDULE_CSV_PATH', os.path.join('data', 'schedule.csv'))
app.config['SCHEDULE_DEFAULT_STATUS'] = resolve_status(os.environ.get('SCHEDULE_DEFAULT_STATUS'))
app.config['SCHEDULE_FAIL_ON_ROW_ERRORS'] = os.environ.get('SCHEDULE_FAIL_ON_ROW_ERRORS', '').lower() in ('1', 'true', 'yes')
app.config['SCHEDULE_COLUMNS'] = DEFAULT_COLUMNS
db = SQLAlchemy(app)
migrate = Migrate(app, db)

# --- Constants ---
CONSTRAINT_TYPES = ['DAY_RESTRICTION', 'CONSECUTIVE_DAYS', 'WEEKEND_PATTERN', 'DAY_PAIRING', 'MAX_SHIFTS_PER_WEEK', 'PREFERRED_DAYS_OFF', 'TIME_OF_DAY', 'MINIMUM_DAYS_BETWEEN']
SCHEDULE_LOAD_ERROR = "Failed to load schedule data"
# --- Decorator for Error Handling ---
def api_error_handler(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try: return f(*args, **kwargs)
        except ScheduleDataError as e:
            logging.error(f"Failed to load schedule data in endpoint '{f.__name__}': {e}", exc_info=True)
            return jsonify({"error": SCHEDULE_LOAD_ERROR}), 500
        except Exception as e:
            logging.error(f"An error occurred in endpoint '{f.__name__}': {e}", exc_info=True)
            return jsonify({"error": "An unexpected server error occurred."}), 500
    return decorated_function
# --- Database Models ---
class SchedulePreference(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    employee = db.Column(db.String(120), nullable=False, index=True)
    constraint_type = db.Column(db.String(32), nullable=False)
    description = db.Column(db.String(500), nullable=False)
    parameters = db.Column(db.JSON, default=lambda: {})
    priority = db.Column(db.Integer, default=0, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    def to_dict(self):
        return { "id": self.id, "employee": self.employee, "constraintType": self.constraint_type, "description": self.description, "parameters": self.parameters or {}, "priority": self.priority, "notes": self.notes, "createdAt": self.created_at.isoformat() }
# --- Helper Functions ---
def _load_schedule():
    return load_schedule_data(app.config['SCHEDULE_CSV_PATH'], columns=app.config['SCHEDULE_COLUMNS'], default_status=app.config['SCHEDULE_DEFAULT_STATUS'], fail_on_row_errors=app.config['SCHEDULE_FAIL_ON_ROW_ERRORS'])

# --- API Endpoints ---
@app.route("/api/schedule-data", methods=['GET'])
@api_error_handler
def get_schedule_data():
    result = _load_schedule()
    return jsonify({"schedules": [s.to_dict() for s in result.schedules], "rowErrors": [e.to_dict(row) for row, e in result.errors]})

@app.route("/api/schedule-data/summary", methods=['GET'])
@api_error_handler
def get_schedule_summary():
    return Response(format_schedule_table(_load_schedule().schedules), mimetype='text/plain')

@app.route("/api/schedule-statuses", methods=['GET'])
@api_error_handler
def get_schedule_statuses():
    return jsonify([{"value": s.value, "label": s.label, "color": s.color} for s in ScheduleStatus])

@app.route("/api/preferences", methods=['GET', 'POST'])
@api_error_handler
def handle_preferences():
    if request.method == 'GET':
        employee = request.args.get('employee')
        if not employee: return jsonify({"error": "Employee is required."}), 400
        prefs = SchedulePreference.query.filter_by(employee=employee).order_by(SchedulePreference.priority.desc(), SchedulePreference.created_at.desc(), SchedulePreference.id.desc()).all()
        return jsonify([p.to_dict() for p in prefs])
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict): return jsonify({"error": "Request body must be a JSON object."}), 400
    employee, constraint_type, description = payload.get('employee'), payload.get('constraintType'), payload.get('description')
    if not all([employee, constraint_type, description]): return jsonify({"error": "Employee, constraintType, and description are mandatory fields."}), 400
    if not all(isinstance(v, str) for v in [employee, constraint_type, description]): return jsonify({"error": "Employee, constraintType, and description must be strings."}), 400
    notes = payload.get('notes')
    if notes is not None and not isinstance(notes, str): return jsonify({"error": "Notes must be a string."}), 400
    if constraint_type not in CONSTRAINT_TYPES: return jsonify({"error": f"Unknown constraint type '{constraint_type}'."}), 400
    parameters = payload.get('parameters') or {}
    if not isinstance(parameters, dict): return jsonify({"error": "Parameters must be an object."}), 400
    try: priority = int(payload.get('priority', 0))
    except (TypeError, ValueError): return jsonify({"error": "Priority must be an integer."}), 400
    pref = SchedulePreference(employee=employee, constraint_type=constraint_type, description=description, parameters=parameters, priority=priority, notes=notes)
    db.session.add(pref)
    db.session.commit()
    return jsonify(pref.to_dict()), 201

@app.route("/api/preferences/<int:pref_id>", methods=['DELETE'])
@api_error_handler
def delete_preference(pref_id):
    pref = db.session.get(SchedulePreference, pref_id)
    if not pref: return jsonify({"error": "Preference not found"}), 404
    db.session.delete(pref)
    db.session.commit()
    return jsonify({"message": f"Preference {pref_id} deleted."})

if __name__ == "__main__":
    app.run(host='0.0.0.0', port=5000, debug=True)
