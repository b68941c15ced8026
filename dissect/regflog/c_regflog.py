from __future__ import annotations

from dissect.cstruct import cstruct

regflog_def = """
typedef ULONG       HCELL_INDEX;
typedef ULONGLONG   LARGE_INTEGER;

typedef struct _HBASE_BLOCK {
    ULONG           Signature;
    ULONG           Sequence1;
    ULONG           Sequence2;
    LARGE_INTEGER   TimeStamp;
    ULONG           Major;
    ULONG           Minor;
    ULONG           Type;
    ULONG           Format;
    HCELL_INDEX     RootCell;
    ULONG           Length;
    ULONG           Cluster;
    WCHAR           FileName[32];
    ULONG           Reserved1[99];
    ULONG           CheckSum;
    ULONG           Reserved2[0x37e];
    ULONG           BootType;
    ULONG           BootRecover;
} HBASE_BLOCK;

typedef struct _HVLE_RECORD {
    ULONG           Signature;
    ULONG           Size;           // Includes this header
    HCELL_INDEX     Offset;         // Offset into the primary hive
    ULONG           Sequence;
    // CHAR            Data[Size - 16];
} HVLE_RECORD;
"""

c_regflog = cstruct().load(regflog_def)

REGF_SIGNATURE = 0x66676572  # regf
HVLE_SIGNATURE = 0x656C7648  # HvLe, dirty page log entry
HKNH_SIGNATURE = 0x486B6E68  # hnkH, hive node header

RECORD_SIGNATURES = (HVLE_SIGNATURE, HKNH_SIGNATURE)

RECORD_HEADER_SIZE = len(c_regflog._HVLE_RECORD)
MAX_RECORD_SIZE = 0x10000

PREVIEW_SIZE = 32
PATH_SCAN_SIZE = 512
MIN_PATH_LENGTH = 4

VALUE_NAME_PLACEHOLDER = "<Dirty Page>"
DATA_BEFORE_PLACEHOLDER = "<Uncommitted>"

LOG_SUFFIXES = (".LOG2", ".LOG1", ".LOG")
