"""Chunk names, markers and magic numbers of the REAPER project format."""

# Project chunk and global settings
PROJECT_CHUNK = "REAPER_PROJECT"
PROJECT_VERSION = "0.1"
PROJECT_APP_VERSION = "6.33/win64"
PROJECT_TEMPO = "TEMPO"
PROJECT_RENDER_METADATA = "RENDER_METADATA"
PROJECT_AUTHOR = "AUTHOR"
PROJECT_NOTES = "NOTES"
PROJECT_TIMELOCKMODE = "TIMELOCKMODE"
PROJECT_TEMPOENVLOCKMODE = "TEMPOENVLOCKMODE"
PROJECT_MARKER = "MARKER"
PROJECT_TEMPO_ENVELOPE = "TEMPOENVEX"
METADATA_TAG = "TAG"

# Master track
MASTER_PEAK_COLOR = "MASTERPEAKCOL"
MASTER_NUMBER_OF_CHANNELS = "MASTER_NCH"
MASTER_MUTE_SOLO = "MASTERMUTESOLO"
MASTER_VOLUME_PAN = "MASTER_VOLUME"
MASTER_FX_LIST = "MASTERFXLIST"
MASTER_VOLUME_ENVELOPE = "MASTERVOLENV2"
MASTER_PANORAMA_ENVELOPE = "MASTERPANENV2"

# Tracks
TRACK = "TRACK"
TRACK_NAME = "NAME"
TRACK_PEAK_COLOR = "PEAKCOL"
TRACK_STRUCTURE = "ISBUS"
TRACK_NUMBER_OF_CHANNELS = "NCHAN"
TRACK_MUTE_SOLO = "MUTESOLO"
TRACK_VOLUME_PAN = "VOLPAN"
TRACK_AUX_RECEIVE = "AUXRECV"
TRACK_VOLUME_ENVELOPE = "VOLENV2"
TRACK_PANORAMA_ENVELOPE = "PANENV2"
TRACK_MUTE_ENVELOPE = "MUTEENV"
TRACK_AUX_VOLUME_ENVELOPE = "AUXVOLENV"
ENVELOPE_POINT = "PT"
ENVELOPE_ACTIVE = "ACT"
ENVELOPE_VISIBLE = "VIS"
ENVELOPE_ARMED = "ARM"
ENVELOPE_DEFAULT_SHAPE = "DEFSHAPE"

# Media items
ITEM = "ITEM"
ITEM_NAME = "NAME"
ITEM_POSITION = "POSITION"
ITEM_LENGTH = "LENGTH"
ITEM_MUTE = "MUTE"
ITEM_NOTES = "NOTES"
ITEM_FADEIN = "FADEIN"
ITEM_FADEOUT = "FADEOUT"
ITEM_SAMPLE_OFFSET = "SOFFS"
ITEM_PLAYRATE = "PLAYRATE"
ITEM_LOOP = "LOOP"
ITEM_SOURCE = "SOURCE"
SOURCE_HASDATA = "HASDATA"
SOURCE_FILE = "FILE"
SOURCE_MIDI = "MIDI"
SOURCE_WAVE = "WAVE"
SOURCE_FLAC = "FLAC"

# Devices
FXCHAIN = "FXCHAIN"
FXCHAIN_BYPASS = "BYPASS"
FXCHAIN_PARAMETER_ENVELOPE = "PARMENV"
CHUNK_VST = "VST"
CHUNK_CLAP = "CLAP"
CLAP_STATE = "STATE"

# Device description tags, instruments end with "i"
PLUGIN_VST_2 = "VST"
PLUGIN_VST_2_INSTRUMENT = "VSTi"
PLUGIN_VST_3 = "VST3"
PLUGIN_VST_3_INSTRUMENT = "VST3i"
PLUGIN_CLAP = "CLAP"
PLUGIN_CLAP_INSTRUMENT = "CLAPi"
INSTRUMENT_TAGS = frozenset({PLUGIN_VST_2_INSTRUMENT, PLUGIN_VST_3_INSTRUMENT, PLUGIN_CLAP_INSTRUMENT})

# Envelope point shapes
SHAPE_LINEAR = 0
SHAPE_SQUARE = 1

# ISBUS structure types
STRUCTURE_PLAIN = 0
STRUCTURE_FOLDER_START = 1
STRUCTURE_FOLDER_END = 2

# VST chunk magic numbers
VST_MAGIC_OPAQUE = 0xFEED5EEE
VST_MAGIC_REGULAR = 0xFEED5EEF
VST_SENTINEL = (0xDEADBEEF, 0xDEADF00D)
VST_STATE_MARKER = 0x100000
VST_STEREO_CONNECTIONS = bytes([1, 0, 0, 0, 0, 0, 0, 0, 2, 0, 0, 0, 0, 0, 0, 0])
VST_NAME_TAIL = bytes([0x10, 0, 0, 0])
VST3_FIRST_CHUNK_MARKER = 0x01000000

# Audio file sources REAPER can reference
AUDIO_SOURCE_TYPES = frozenset({SOURCE_WAVE, SOURCE_FLAC})
PROJECT_EXTENSIONS = {".rpp", ".rpp-bak"}
DAWPROJECT_EXTENSION = ".dawproject"
