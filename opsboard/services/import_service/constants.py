"""Constants for the bulk incident import pipeline."""

# Maximum data rows read from one file
MAX_ROWS = 5000

# Records committed per storage write
DEFAULT_BATCH_SIZE = 10

# Parallel duplicate lookups per session
DEFAULT_DUPLICATE_CHECK_CONCURRENCY = 8

# Accepted upload extensions
ALLOWED_EXTENSIONS = {"csv", "xlsx", "xls"}

# Header alias table: normalized alias -> canonical field name.
# Keys are lowercase, accent-free and single-spaced (see mapping.normalize_header).
HEADER_ALIASES: dict[str, str] = {
    # start date
    "data inicio": "start_date",
    "data de inicio": "start_date",
    "data inicial": "start_date",
    "start date": "start_date",
    "date started": "start_date",
    # start time
    "hora inicio": "start_time",
    "hora de inicio": "start_time",
    "hora inicial": "start_time",
    "start time": "start_time",
    # combined start date-time
    "inicio": "start_datetime",
    "data hora inicio": "start_datetime",
    "data/hora de inicio": "start_datetime",
    "data/hora inicio": "start_datetime",
    "start": "start_datetime",
    "started at": "start_datetime",
    # end date
    "data fim": "end_date",
    "data de fim": "end_date",
    "data final": "end_date",
    "data termino": "end_date",
    "data de termino": "end_date",
    "end date": "end_date",
    # end time
    "hora fim": "end_time",
    "hora de fim": "end_time",
    "hora final": "end_time",
    "hora termino": "end_time",
    "hora de termino": "end_time",
    "end time": "end_time",
    # combined end date-time
    "fim": "end_datetime",
    "data hora fim": "end_datetime",
    "data/hora de fim": "end_datetime",
    "data/hora fim": "end_datetime",
    "end": "end_datetime",
    "ended at": "end_datetime",
    # incident type
    "natureza": "type_name",
    "tipo": "type_name",
    "tipo de incidente": "type_name",
    "tipo incidente": "type_name",
    "type": "type_name",
    "incident type": "type_name",
    # criticality
    "criticidade": "criticality_name",
    "criticality": "criticality_name",
    "severidade": "criticality_name",
    "severity": "criticality_name",
    # environment
    "ambiente": "environment_name",
    "environment": "environment_name",
    # segment
    "segmento": "segment_name",
    "segment": "segment_name",
    # description
    "problema": "description",
    "descricao": "description",
    "descricao do problema": "description",
    "descricao do incidente": "description",
    "description": "description",
    "problem": "description",
    # actions taken
    "solucao": "actions_taken",
    "acoes tomadas": "actions_taken",
    "acoes": "actions_taken",
    "solution": "actions_taken",
    "actions taken": "actions_taken",
    "resolution": "actions_taken",
}

# Canonical fields the normalizer can populate
CANONICAL_FIELDS = {
    "start_date",
    "start_time",
    "start_datetime",
    "end_date",
    "end_time",
    "end_datetime",
    "type_name",
    "criticality_name",
    "environment_name",
    "segment_name",
    "description",
    "actions_taken",
}

# Column layout of the downloadable example file
TEMPLATE_HEADERS = [
    "Data início",
    "Hora de início",
    "Data Fim",
    "Hora de fim",
    "Natureza",
    "Criticidade",
    "Ambiente",
    "Segmento",
    "Problema",
    "Solução",
]

TEMPLATE_ROWS = [
    [
        "26/03/2025", "12:30", "26/03/2025", "13:45", "Falha de Sistema", "Alto",
        "Produção", "Web Server", "Servidor web não responde", "Reinicialização do serviço",
    ],
    [
        "27/03/2025", "09:15", "", "", "Manutenção", "Baixo",
        "Desenvolvimento", "Database", "Atualização de schema", "Aplicação de scripts SQL",
    ],
]

# Operator-facing error messages
MSG_START_REQUIRED = "start date-time is required"
MSG_TYPE_REQUIRED = "incident type is required"
MSG_CRITICALITY_REQUIRED = "criticality is required"
MSG_ENVIRONMENT_REQUIRED = "environment is required"
MSG_SEGMENT_REQUIRED = "segment is required"
MSG_DESCRIPTION_REQUIRED = "description is required"
MSG_INVALID_START = "invalid start date-time format"
MSG_INVALID_END = "invalid end date-time format"
MSG_END_BEFORE_START = "end must not precede start"
MSG_DUPLICATE = "duplicate incident (same start time and environment)"
MSG_DUPLICATE_CHECK_FAILED = "duplicate check failed, record kept: {cause}"

# Audit trail
AUDIT_ACTION_IMPORT = "import_incidents"
