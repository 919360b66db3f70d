# [Bank Section Tags]
HIRC = b"HIRC"
# [End]

# [Hierarchy Type ID]
class HircType:
    MusicSegment = 0x0A
    MusicTrack = 0x0B
    MusicSwitch = 0x0C
    MusicRandomSequence = 0x0D
# [End]

# [Music Track Source]
SOURCE_TYPES_WITH_EXTRA = (0x01, 0x02)
INCLUSION_TYPES_WITH_EXTRA = (0x00, 0x01, 0x02)
# [End]

# [Base Param Gates]
POSITIONING_HAS_3D = 0x02
POSITIONING_HAS_AUTOMATION = 0x20
AUX_HAS_AUX = 0x08
# [End]

# [Path Table]
PATH_RECORD_SIZE = 12
# [End]

# [Snd Container]
SND_ENTRY_SIZE = 32
SND_FORMAT_OPUS = 2
# [End]

# File Names
SOUND_METADATA_FILE_NAME = "soundmetadata.bin"
PCB_FILE_NAME = "packed_codebooks_aoTuV_603.bin"
UTILS_RELATIVE_PATH = "utils"
CONFIG_FILE_NAME = "config.pickle"

# [Naming]
EVENT_NAME_STRIP_PATTERN = r"(^play_(vo_)?)|(^stop_)|([_]ghost([1-9]*)?(.*))"
SOUND_ID_TAG = "_id#"
# [End]
